"""A small first-person shooter engine: transforms, timing, textures, shaders, a scene graph, player controls, a game loop and a UDP server."""

__version__ = "0.1.0"