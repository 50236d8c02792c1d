"""Web application glue around the mivivienda engine."""
