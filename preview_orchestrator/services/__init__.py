"""Services of the preview orchestrator: routing model, log chunks and orchestration."""
