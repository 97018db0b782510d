"""Campus Feed API - role-aware community feed and moderation engine."""
