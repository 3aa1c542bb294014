from stream_proxy.main import run

run()
