"""Command-line host for the botracers workbench."""
