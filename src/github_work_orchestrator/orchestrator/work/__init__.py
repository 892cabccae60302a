"""Work units: model, registry, project resolution and the top-level driver."""
