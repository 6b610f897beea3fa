"""Service layer coordinating store, installer and runtime."""
