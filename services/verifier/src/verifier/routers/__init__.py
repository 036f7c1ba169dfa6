"""HTTP routers for the BoothGuard verification service."""
