"""Transport layer: Event Hub producer/receiver adapters and message types."""
