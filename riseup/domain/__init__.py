"""Domain services: library catalogue, media relay and playback."""
