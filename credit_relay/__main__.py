from credit_relay.main import run

run()
