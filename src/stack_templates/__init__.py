"""Fixed documents for the local Laravel + Vue stack.

Rendering is pure: a persistence profile maps to the exact bytes of
`docker-compose.yml` and `backend/Dockerfile`. Writing them is the
bootstrapper's job, and it never overwrites an existing file.
"""
