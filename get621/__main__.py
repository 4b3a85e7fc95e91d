from get621.cli import main

main()
