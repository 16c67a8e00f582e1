API_VERSION_HEADER = "X-Clipforge-Version"
REQUEST_ID_HEADER = "X-Request-ID"

# Stripe signs the raw webhook body and sends the result in this header
STRIPE_SIGNATURE_HEADER = "Stripe-Signature"

# JWT Configuration
JWT_SECRET_ALGORITHM = "HS256"
JWKS_ALGORITHM = "RS256"
BEARER_PREFIX = "Bearer "

# Paths that produce no access log line
SKIP_LOGGING_PATHS = {
    "/health",
    "/health/liveness",
}
