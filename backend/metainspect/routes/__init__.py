"""HTTP routes for the inspection control surface."""
