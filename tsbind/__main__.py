from tsbind.cli import main

main()
