"""Dataset ingesters, preprocessors and feature builders."""
