"""Feature modules: params, versioning, training, prediction, algorithm, introspection and ml."""
