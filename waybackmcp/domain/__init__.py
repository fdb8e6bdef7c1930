"""Domain Layer: models, events and the interfaces (ports) infrastructure implements."""
