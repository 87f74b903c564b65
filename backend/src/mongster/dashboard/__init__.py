"""Dashboard module: HTML view of captured messages."""
