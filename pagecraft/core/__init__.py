"""GUI-agnostic core: models, path resolution, editing services and drag sessions."""
