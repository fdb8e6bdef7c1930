"""Domain models: value objects, operation results and tool inputs."""
