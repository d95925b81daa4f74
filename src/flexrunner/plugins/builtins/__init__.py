"""Built-in plugins shipped with flexrunner."""
