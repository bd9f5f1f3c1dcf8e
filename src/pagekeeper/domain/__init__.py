"""Domain layer: archive metadata records, mapping rules and reconcilers."""
