# EXOCORPSE - shared services
# Stateless helpers used by several components (pagination, caching,
# form state, signed URLs). Business rules live in src/components/.
