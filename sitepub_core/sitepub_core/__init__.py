"""sitepub core engine: site build, snapshots and deploy orchestration."""
