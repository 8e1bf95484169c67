"""Generate TypeScript types and per-tag API clients from OpenAPI documents."""
