from axon_transfer.main import console_main

console_main()
