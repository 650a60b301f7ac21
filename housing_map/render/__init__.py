"""Layer state and folium rendering."""
