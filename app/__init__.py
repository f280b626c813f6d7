"""YouTube learning-path curation service."""
