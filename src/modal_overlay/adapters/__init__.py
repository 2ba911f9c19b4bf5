"""Host integrations for the overlay engine."""
