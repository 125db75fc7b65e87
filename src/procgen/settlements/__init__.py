"""Settlement layout: sites, districts, streets, lots, buildings and walls."""
