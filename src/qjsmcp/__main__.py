from qjsmcp.cli import main

main()
