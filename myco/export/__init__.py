from myco.export.image import export_gif, export_png, render_rgb

__all__ = ["export_gif", "export_png", "render_rgb"]
