"""
Catalog app: the narrow service-listing contract the escrow engine consumes.

Listing CRUD and search are handled elsewhere; the engine only needs
"given a service id, return its price, type, seller, delivery window and
whether it can be bought" (ServiceCatalog) and a sale counter.
"""
