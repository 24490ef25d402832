# Services layer for cart business logic
