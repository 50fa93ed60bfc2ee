"""
Console consumer of the network state: the Typer app and its Rich views.
"""
