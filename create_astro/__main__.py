from create_astro.cli import main

main()
