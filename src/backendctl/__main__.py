from backendctl.cli import main

main()
