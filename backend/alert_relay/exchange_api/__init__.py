"""
Exchange API Integration

- Authentication (HMAC request signing)
- Order relay with fixed-interval retry on server errors
"""
