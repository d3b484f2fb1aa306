from devsetup.main import main

main()
