"""FontImage command line application."""
