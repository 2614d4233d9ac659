"""Infrastructure: logging, lifespan wiring, Redis, rate limiting, telemetry."""
