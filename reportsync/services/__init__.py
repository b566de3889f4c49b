"""Domain services for merging and reconciling report sections."""
