from hotwire import Message, command


@command(description="Shows how often the bot greeted", errors="hidden")
def greetings(runtime, interaction):
    """Reads the counter kept by GreeterComponent."""
    greeter = runtime.get("GreeterComponent")
    if greeter is None:
        raise RuntimeError("GreeterComponent is not loaded")
    return Message(content=f"Greeted {greeter.count} time(s).", ephemeral=True)


default = greetings
