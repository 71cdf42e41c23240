"""Pagination engine: surface, paginator, header/footer, flow, tables and charts."""
