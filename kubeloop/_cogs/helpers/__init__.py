"""
General-purpose helpers not related to the operator runtime itself
(neither to the reactor nor to the actions nor to the structs),
which are used to prepare and control the runtime environment.

Helpers do not depend on anything else in the package.
If they implement concepts of the runtime, they are not "helpers"
(consider making them structs, clients, or the reactor parts).
"""
