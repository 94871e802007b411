"""Prune stale version-stage labels from AWS Secrets Manager secrets."""
