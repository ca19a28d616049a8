from hotwire import command


@command(description="Replies with pong")
async def ping(runtime, interaction):
    return "pong"


default = ping
