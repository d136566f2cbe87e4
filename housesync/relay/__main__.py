from housesync.relay.outbox_relay import main

main()
