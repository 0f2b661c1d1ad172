"""FastAPI service driving a Pop Arcade session controller."""
