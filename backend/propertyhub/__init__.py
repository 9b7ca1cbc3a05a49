"""PropertyHub property-management API."""
