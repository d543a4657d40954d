"""Speech domain - HTTP surface over the TTS provider core."""
