from contact_server.main.main import create_app, run

# the contacts table is created on startup if it does not already exist
app = create_app()

if __name__ == '__main__':
    run(app)
