"""Building HVAC energy simulation."""
