"""Services subpackage - catalog, validation, shop state and broadcast payloads."""
