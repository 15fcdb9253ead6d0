"""Flask preview server that inlines stylesheets into served HTML pages."""
