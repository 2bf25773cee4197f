"""Character codes, validation, preview and frame rendering for the board."""
