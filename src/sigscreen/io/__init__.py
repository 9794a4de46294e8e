"""Export of annotation grids."""
