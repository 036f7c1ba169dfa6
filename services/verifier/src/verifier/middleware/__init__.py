"""HTTP middleware for the BoothGuard verification service."""
