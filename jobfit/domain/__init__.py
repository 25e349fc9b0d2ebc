"""Domain Layer: models, errors, events and the interfaces (ports) the
rest of the application depends on."""
