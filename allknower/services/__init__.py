"""Domain services: model routing, parsing, prompting, indexing and lore insights."""
