"""Building blocks shared by the analyzers."""
