"""Repository layer - data access abstractions and implementations."""
