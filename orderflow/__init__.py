"""Order lifecycle and kitchen queue service."""
