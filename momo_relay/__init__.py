"""Server-side relay between browser clients and the pawaPay mobile-money API."""
