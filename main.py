from fastapi import FastAPI
from mangum import Mangum

from corsrelay import Relay
from dotenv import load_dotenv


load_dotenv()

relay = Relay()
app = FastAPI()


relay.to_fastapi(app)


handler = Mangum(app)
