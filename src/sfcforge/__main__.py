from sfcforge.cli import main

main()
