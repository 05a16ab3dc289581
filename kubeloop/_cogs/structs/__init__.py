"""
All the structures and functions to describe and manipulate the objects
as they come from and go to the API: bodies, identities, references,
finalizer lists, definitions, credentials.

All the functions are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
