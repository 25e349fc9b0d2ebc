"""Console front-end built on rich."""
