"""HTTP host -- FastAPI app exposing funding rates, calendar, and the cron trigger."""
