"""Authentication and authorization.

Learn: Stateless auth. Nothing about a logged-in user lives on the server
between requests.
1. jwt.py → TokenCodec signs and checks access/refresh tokens
2. identity.py → IdentityResolver turns request headers into an Identity
3. middleware/authentication.py → runs the resolver once per request
4. dependencies.py → hands the Identity to route handlers explicitly
5. ownership.py → "does this caller own that row?"
"""
