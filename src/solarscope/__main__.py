from solarscope.cli import main

main()
