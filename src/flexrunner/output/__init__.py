"""Output layer — Rich and JSON rendering of ServiceResults."""
