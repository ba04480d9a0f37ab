"""HTTP collaborators: LLM completions and image recognition."""
