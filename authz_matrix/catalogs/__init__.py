"""Static role and command catalogs loaded by the driver."""
